"""Seed knowledge loaded into every new knowledge base: (category, question, answer, keywords)."""

BUILTIN_KNOWLEDGE = [
    ('programming', '什么是变量',
     '变量是程序中用于存储数据的容器。它有一个名称（标识符）和一个值。在不同的编程语言中，变量的声明方式不同：\n\n'
     '- **JavaScript**: `let name = "张三"; const age = 25;`\n'
     '- **Python**: `name = "张三"; age = 25`\n'
     '- **Java**: `String name = "张三"; int age = 25;`\n\n'
     '变量可以被读取和修改（除非是常量）。',
     ['变量', '存储', '数据', '声明']),

    ('programming', '什么是函数',
     '函数是一段可重复使用的代码块，用于执行特定任务。函数可以接收输入（参数）并返回输出（返回值）。\n\n'
     '**函数的优点**：\n'
     '1. 代码复用 - 避免重复编写相同代码\n'
     '2. 模块化 - 将复杂问题分解为小问题\n'
     '3. 可维护性 - 修改一处即可影响所有调用\n\n'
     '**示例**：\n```python\ndef greet(name):\n    return f"你好，{name}！"\n```',
     ['函数', '方法', '代码块', '复用']),

    ('programming', '什么是数组',
     '数组是一种数据结构，用于存储多个相同类型的元素。数组中的元素通过索引（下标）访问，索引通常从0开始。\n\n'
     '**常见操作**：\n'
     '- 访问元素：`arr[0]`\n'
     '- 添加元素：`arr.push(item)`\n'
     '- 删除元素：`arr.pop()`\n'
     '- 遍历：`for...of` 或 `forEach`',
     ['数组', '列表', '集合', '索引']),

    ('programming', '什么是循环',
     '循环是一种控制结构，用于重复执行一段代码，直到满足特定条件。\n\n'
     '**常见循环类型**：\n'
     '1. **for循环** - 已知循环次数时使用\n'
     '2. **while循环** - 条件为真时持续执行\n'
     '3. **do-while循环** - 至少执行一次\n'
     '4. **for...of** - 遍历可迭代对象',
     ['循环', 'for', 'while', '遍历', '迭代']),

    ('programming', '什么是面向对象',
     '面向对象编程（OOP）是一种编程范式，将数据和操作数据的方法组织成"对象"。\n\n'
     '**四大特性**：\n'
     '1. **封装** - 将数据和方法包装在类中，隐藏内部实现\n'
     '2. **继承** - 子类继承父类的属性和方法\n'
     '3. **多态** - 同一方法在不同对象中有不同实现\n'
     '4. **抽象** - 提取共同特征，忽略细节',
     ['面向对象', 'OOP', '类', '对象', '封装', '继承', '多态']),

    ('programming', '什么是API',
     'API（Application Programming Interface，应用程序编程接口）是软件系统之间进行交互的接口。\n\n'
     '**类型**：\n'
     '1. **Web API** - 通过HTTP协议访问的接口（REST、GraphQL）\n'
     '2. **库/框架API** - 编程语言或框架提供的接口\n'
     '3. **操作系统API** - 系统级别的接口',
     ['API', '接口', 'REST', 'HTTP', 'Web']),

    ('framework', 'React是什么',
     'React是由Facebook开发的JavaScript库，用于构建用户界面。\n\n'
     '**核心特点**：\n'
     '1. **组件化** - UI拆分为独立可复用的组件\n'
     '2. **虚拟DOM** - 高效的DOM更新机制\n'
     '3. **单向数据流** - 数据从父组件流向子组件\n'
     '4. **JSX语法** - 在JavaScript中编写类HTML代码',
     ['React', '前端', '组件', 'JavaScript', 'UI']),

    ('framework', 'Vue是什么',
     'Vue.js是一个渐进式JavaScript框架，用于构建用户界面。\n\n'
     '**核心特点**：\n'
     '1. **响应式数据绑定** - 数据变化自动更新视图\n'
     '2. **组件系统** - 可复用的UI组件\n'
     '3. **指令系统** - v-if、v-for、v-model等\n'
     '4. **渐进式** - 可以逐步采用',
     ['Vue', '前端', '响应式', 'JavaScript', 'MVVM']),

    ('framework', 'Node.js是什么',
     'Node.js是一个基于Chrome V8引擎的JavaScript运行时环境，让JavaScript可以在服务器端运行。\n\n'
     '**核心特点**：\n'
     '1. **事件驱动** - 基于事件循环的非阻塞I/O\n'
     '2. **单线程** - 主线程单线程，通过异步处理并发\n'
     '3. **NPM生态** - 丰富的包管理系统\n'
     '4. **跨平台** - 支持Windows、Linux、macOS',
     ['Node.js', '后端', '服务器', 'JavaScript', 'NPM']),

    ('general', '什么是人工智能',
     '人工智能（AI）是计算机科学的一个分支，致力于创建能够模拟人类智能的系统。\n\n'
     '**主要领域**：机器学习、深度学习、自然语言处理、计算机视觉、机器人学。\n\n'
     '**应用场景**：语音助手、推荐系统、自动驾驶、医疗诊断等。',
     ['人工智能', 'AI', '机器学习', '深度学习', 'NLP']),

    ('general', '什么是机器学习',
     '机器学习是人工智能的一个子领域，让计算机能够从数据中自动学习和改进，而无需明确编程。\n\n'
     '**三种主要类型**：\n'
     '1. **监督学习** - 从标注数据中学习（分类、回归）\n'
     '2. **无监督学习** - 从未标注数据中发现模式（聚类）\n'
     '3. **强化学习** - 通过与环境交互学习（游戏AI）',
     ['机器学习', 'ML', '监督学习', '无监督学习', '算法']),

    ('about', '你是谁',
     '我是**智器云助手**，一个完全自主研发的AI对话系统。\n\n'
     '**我的特点**：\n'
     '- 自主NLU引擎 - 理解您的意图和需求\n'
     '- 内置知识库 - 涵盖编程、技术、通用知识\n'
     '- 技能系统 - 计算、代码生成、翻译等\n'
     '- 多轮对话 - 记住上下文，连贯交流',
     ['你是谁', '介绍', '智器云', '助手']),

    ('about', '你能做什么',
     '我可以帮您完成以下任务：\n\n'
     '**编程帮助**：解释编程概念、生成代码片段、解答技术问题\n\n'
     '**知识问答**：解释技术术语、介绍框架和工具\n\n'
     '**实用工具**：数学计算、日期时间查询、简单翻译\n\n'
     '试着问我一个问题吧！',
     ['功能', '能力', '做什么', '帮助']),

    ('comparison', 'React和Vue的区别',
     '**React vs Vue 对比**：\n\n'
     '| 特性 | React | Vue |\n'
     '|------|-------|-----|\n'
     '| 类型 | 库 | 框架 |\n'
     '| 语法 | JSX | 模板/JSX |\n'
     '| 数据流 | 单向 | 双向绑定 |\n'
     '| 学习曲线 | 较陡 | 较平缓 |\n\n'
     '**选择建议**：大型企业应用 → React；中小型项目、快速上手 → Vue',
     ['React', 'Vue', '区别', '对比', '比较']),

    ('comparison', 'let和const的区别',
     '**let vs const vs var 对比**：\n\n'
     '| 特性 | var | let | const |\n'
     '|------|-----|-----|-------|\n'
     '| 作用域 | 函数作用域 | 块作用域 | 块作用域 |\n'
     '| 重复声明 | 允许 | 不允许 | 不允许 |\n'
     '| 重新赋值 | 允许 | 允许 | 不允许 |\n\n'
     '**使用建议**：默认使用 `const`，需要重新赋值时使用 `let`，避免使用 `var`。',
     ['let', 'const', 'var', '区别', '变量']),
]
